from payout_sync.main import main

main()
