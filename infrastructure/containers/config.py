"""
配置容器（ConfigContainer）

只提供 Settings 单例，测试可以用 override 替换。
"""

from dependency_injector import containers, providers

from infrastructure.config.settings import get_settings


class ConfigContainer(containers.DeclarativeContainer):
    """配置容器"""

    settings = providers.Singleton(get_settings)
