from granoladrive.cli import main

main()
