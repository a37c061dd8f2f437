from tablepos.demo.default_menu import seed_default_menu

__all__ = ["seed_default_menu"]
