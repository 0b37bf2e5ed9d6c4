"""Monkey AI command line interface"""
