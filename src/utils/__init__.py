# Utilities for genius-chat: configuration, logging, clock
