"""Task domain - task requests and their status lifecycle"""
