from testcrew.execution.cli import main

main()
