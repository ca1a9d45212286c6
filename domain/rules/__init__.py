"""邮件规则界限上下文"""
