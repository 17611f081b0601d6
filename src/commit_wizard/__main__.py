from commit_wizard.cli import main

main()
