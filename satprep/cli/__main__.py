from satprep.cli.prep_cli import main

main()
