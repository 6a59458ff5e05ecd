from .runner_game import main

main()
