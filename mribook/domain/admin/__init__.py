"""Admin domain - management panel endpoints"""
