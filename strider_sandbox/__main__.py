from strider_sandbox.main import main

main()
