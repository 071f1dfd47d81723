"""
hms_app - 租户集成层

在 hms_core 之上接入配置、持久化、认证与服务：
- config: pydantic-settings 配置
- database: SQLAlchemy 引擎与会话
- models: ORM 模型与 pydantic schemas
- security: bcrypt / python-jose 认证与 FastAPI 授权依赖
- services: 酒店用户、酒店、供应商服务
"""
