"""用量与计费界限上下文"""
