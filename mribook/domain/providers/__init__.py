"""Providers domain - bookable services and their reserved slots"""
