"""Payments domain - checkout sessions, verification, refunds and webhooks"""
