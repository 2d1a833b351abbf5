from bitcoin_data_mcp.cli import main

main()
