"""Root controller, session and tab lifecycle."""
