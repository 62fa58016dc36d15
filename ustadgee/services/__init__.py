"""Application services shared by HTTP and WebSocket flows"""
