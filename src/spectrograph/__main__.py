from spectrograph.cli import main

main()
