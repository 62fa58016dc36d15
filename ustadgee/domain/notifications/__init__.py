"""Notification domain - stored notification history"""
