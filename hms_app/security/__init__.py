"""
认证与授权
"""
