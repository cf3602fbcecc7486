"""Provider core types and exceptions"""
