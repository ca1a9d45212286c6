"""邮箱领域服务接口"""
