from depthdesk.cli import main

main()
