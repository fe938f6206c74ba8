from transit_live.server import main

main()
