"""Patients domain - registration, login and profile"""
