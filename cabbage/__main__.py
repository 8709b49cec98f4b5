from cabbage.cli import main

main()
