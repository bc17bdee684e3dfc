from camgate.cli import main

main()
