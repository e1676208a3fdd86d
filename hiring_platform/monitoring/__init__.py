"""Monitoring package"""
