"""Appointments domain - booking, cancellation and slot release"""
