"""
WordVale 后端应用
"""
