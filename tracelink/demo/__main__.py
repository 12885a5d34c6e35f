from tracelink.demo.cli import main

main()
