from themeforge.cli import main

main()
