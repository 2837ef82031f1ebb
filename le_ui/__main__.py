from le_ui.cli import main

main()
