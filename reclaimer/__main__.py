from reclaimer.main import main

main()
