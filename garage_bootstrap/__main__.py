from garage_bootstrap.scripts.bootstrap import main

main()
