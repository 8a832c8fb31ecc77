from asana_mcp.server import main

main()
