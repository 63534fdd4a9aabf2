from admin_dashboard.server import main

main()
