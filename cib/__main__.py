from cib.cli.app import main

main()
