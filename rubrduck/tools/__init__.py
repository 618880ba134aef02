"""File and git tools that a chat model can call."""