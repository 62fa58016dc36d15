"""Ustadgee service marketplace API"""
