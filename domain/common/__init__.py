"""领域层公共模块"""
