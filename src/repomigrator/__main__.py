from repomigrator.cli.main import main

main()
