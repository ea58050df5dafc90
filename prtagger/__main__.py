from prtagger.cli.app import main

main()
