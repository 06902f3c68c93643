"""Core commit synchronization logic for commitsync."""
