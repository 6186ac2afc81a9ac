"""Client-resident snake simulation (board, session rules, tick loop, scoreboard sync).

Kept free of FastAPI concerns so it can be driven by any front-end, and by tests.
"""
