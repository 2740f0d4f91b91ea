from rigsim.cli.main import main

main()
