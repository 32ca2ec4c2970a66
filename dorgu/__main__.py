from dorgu.cli import main

main()
