from contract_studio.cli.app import main

main()
