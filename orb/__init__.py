"""orb - shell 脚本库包管理器"""

__version__ = "0.1.0"
