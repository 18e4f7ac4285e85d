"""Feature modules of the MemoSpark web client."""
