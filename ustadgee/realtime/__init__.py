"""Real-time messaging core: presence, chat relay and live notification push"""
