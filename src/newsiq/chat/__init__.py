"""Chat sessions and the article chat relay."""
