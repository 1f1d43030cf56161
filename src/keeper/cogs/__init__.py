"""Slash-command cogs, one command family (or a few related ones) per module.

Every module exposes ``async def setup(bot)``; :class:`keeper.bot.KeeperBot`
discovers and calls it at startup.
"""
