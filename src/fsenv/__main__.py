from fsenv.handler import main

main()
