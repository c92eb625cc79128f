from wtg.cli.app import main

main()
