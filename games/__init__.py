"""
Arcade game logic for the Irys arcade bot.

Submodules:
    snake: ``SnakeGameSimulator`` -- draws a score and play time and waits
        for the play time to elapse.
    scores: ``ScoreRecord`` and ``ScorePublisher`` -- tagged score documents
        uploaded to the storage network.
"""
