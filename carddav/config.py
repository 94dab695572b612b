import json
import logging
import os

"""
Configuration file reading for get_davclient.

A config file is a JSON (or, if PyYAML is installed, YAML) mapping of
section names to sections.  A section may name another section under
``inherits`` to take its keys as defaults.
"""

log = logging.getLogger("carddav")


def config_section(config, section="default"):
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    ret.pop("inherits", None)
    return ret


def read_config(fn):
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config"
        for config_file in (
            f"{cfgdir}/carddav/contacts.conf",
            f"{cfgdir}/carddav/contacts.yaml",
            f"{cfgdir}/carddav/contacts.json",
            f"{cfgdir}/contacts.conf",
            "/etc/carddav/contacts.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        with open(fn, "rb") as config_file:
            raw = config_file.read()
    except FileNotFoundError:
        log.info(f"no config file found at {fn}")
        return None

    try:
        return json.loads(raw)
    except json.decoder.JSONDecodeError:
        ## Late import; yaml is an external module, and not included in
        ## the requirements as for now.
        try:
            import yaml
        except ImportError:
            log.error(
                f"config file {fn} exists but is not valid json, and pyyaml is not installed."
            )
            return None
        try:
            return yaml.safe_load(raw)
        except yaml.YAMLError:
            log.error(
                f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax."
            )
            return None
