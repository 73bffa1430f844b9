"""CLI Commands"""

import os
import sys

from lazycommit.config import ConfigError, load_config, load_global_config, save_config, get_config_path, SECRET_KEYS
from lazycommit.llm import PROVIDERS
from lazycommit.output import bold, dim, info, print_success, print_error
from lazycommit.secrets import default_resolver


def _mask(secret: str) -> str:
    return f"{secret[:6]}...{secret[-4:]}" if len(secret) > 12 else "***"


def display_config() -> int:
    """Display current configuration."""
    config = load_config()
    config_path = get_config_path()

    print(f"\n{bold('Current Configuration')}\n")

    if config_path:
        print(f"  {dim('Loaded from:')} {config_path}")
    else:
        print(f"  {dim('Loaded from:')} defaults (no .lazycommitrc found)")

    env_provider = os.environ.get('LAZYCOMMIT_PROVIDER')
    env_model = os.environ.get('LAZYCOMMIT_MODEL')
    if env_provider or env_model:
        print(f"  {dim('Environment overrides:')}")
        if env_provider:
            print(f"    LAZYCOMMIT_PROVIDER={env_provider}")
        if env_model:
            print(f"    LAZYCOMMIT_MODEL={env_model}")

    print()
    print(f"  {bold('Settings:')}")
    for key, value in config.to_dict().items():
        if key in SECRET_KEYS:
            continue
        if isinstance(value, list):
            value = ', '.join(value) or '-'
        print(f"    {key + ':':<22}{info(str(value))}")

    print(f"\n  {bold('API keys:')}")
    resolver = default_resolver(config)
    for client_class in PROVIDERS.values():
        key_name = getattr(client_class, 'KEY_NAME', None)
        if not key_name:
            continue
        value = resolver.get(key_name)
        shown = f"{_mask(value)} ({resolver.source_of(key_name)})" if value else dim('not set')
        print(f"    {key_name + ':':<22}{shown}")

    print(f"\n  {dim('Config locations:')}")
    print(f"    Local:  .lazycommitrc (in current directory)")
    print(f"    Global: ~/.lazycommitrc")
    print(f"\n  {dim('Run')} lazycommit --set key=value {dim('to configure')}\n")

    return 0


def run_set(pairs: list[str]) -> int:
    """Validate and save key=value settings to the global config."""
    config = load_global_config()
    try:
        config.set_values(pairs)
    except ConfigError as e:
        print_error(str(e))
        return 1
    path = save_config(config, global_config=True)
    print_success(f"Saved to {path}")
    return 0


def run_install_completion() -> int:
    """Install shell tab completion."""
    shell = os.environ.get('SHELL', '')
    line = 'eval "$(register-python-argcomplete lazycommit)"'

    print(f"\n{bold('Tab Completion Setup')}\n")

    if 'zsh' in shell or 'bash' in shell:
        rc_file = '~/.zshrc' if 'zsh' in shell else '~/.bashrc'
        print(f"Add this line to {dim(os.path.expanduser(rc_file))}:\n")
        print(f"  {line}\n")
        print(f"Then run: {dim('source ' + rc_file)}")
    elif sys.platform == 'win32':
        print("For PowerShell, run:\n")
        print("  register-python-argcomplete --shell powershell lazycommit | Out-String | Invoke-Expression")
    else:
        print("Run one of these based on your shell:\n")
        print(f"  {dim('# Bash/Zsh')}")
        print(f"  {line}\n")
        print(f"  {dim('# Fish')}")
        print("  register-python-argcomplete --shell fish lazycommit | source")

    print(f"\n{dim('After setup, press TAB to autocomplete flags.')}")
    return 0
