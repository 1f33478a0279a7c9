"""配置模块：运行时设置与种子数据。"""
