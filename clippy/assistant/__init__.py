"""
Assistant package.

Provides the conversation core:
- HistoryStore: bounded message window mirrored to the durable log
- ResponderChain: ordered backend fallback producing one reply per turn
"""

from .history import HistoryStore
from .responder_chain import EMPTY_INPUT_PROMPT, ChainReply, ResponderChain

__all__ = [
    'HistoryStore',
    'ResponderChain',
    'ChainReply',
    'EMPTY_INPUT_PROMPT',
]
