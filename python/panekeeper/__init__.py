"""panekeeper - progress panes for coding agents in tmux, WezTerm and Zellij."""

__version__ = "0.1.0"
