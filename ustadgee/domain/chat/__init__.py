"""Chat domain - persisted chat threads and messages"""
