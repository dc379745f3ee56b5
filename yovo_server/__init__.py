# -*- coding: utf-8 -*-
"""
Yovo Voice Chat Server
----------------------
Real-time spoken conversation between a student and a chat-completion LLM,
steered through a fixed sequence of discussion topics.
"""

__version__ = "1.0.0"
