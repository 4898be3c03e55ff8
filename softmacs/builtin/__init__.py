from softmacs.builtin.env_builtin import make_global_environment, register

__all__ = ["make_global_environment", "register"]
