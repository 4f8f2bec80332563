from .game import Game, GamePlayer

__all__ = [
    "Game",
    "GamePlayer",
]
