"""infpm 核心安装流水线

解析 → 获取 → 解压 → 布局识别 → 链接 → 清理
"""
