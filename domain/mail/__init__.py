"""邮件领域模块

- Email（规范化邮件）、Attachment、Tag 实体
- 仓储接口
- 附件存储、外发邮件、同步事件推送接口
"""
