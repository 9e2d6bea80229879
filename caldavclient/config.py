import json
import logging
import os

"""
Configuration file reading.  A config file is a JSON (or, if pyyaml is
installed, YAML) object with one section per server:

    {
      "default": {"caldav_url": "https://cal.example.com/dav/",
                  "caldav_user": "alice", "caldav_pass": "secret"},
      "work": {"inherits": "default", "caldav_url": "https://work.example.com/"}
    }
"""

log = logging.getLogger("caldavclient")


def config_section(config, section="default"):
    """
    The settings of one section, with the settings of the section it
    ``inherits`` from (recursively) filled in underneath.
    """
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def read_config(fn=None):
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config/"
        for config_file in (
            f"{cfgdir}/caldavclient/calendar.conf",
            f"{cfgdir}/caldavclient/calendar.yaml",
            f"{cfgdir}/caldavclient/calendar.json",
            "/etc/caldavclient/calendar.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        try:
            with open(fn, "rb") as config_file:
                return json.load(config_file)
        except json.decoder.JSONDecodeError:
            ## Late import, wrapped in try/except.  yaml is an optional
            ## dependency.
            try:
                import yaml

                try:
                    with open(fn, "rb") as config_file:
                        return yaml.load(config_file, yaml.SafeLoader)
                except yaml.YAMLError:
                    log.error(
                        f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax."
                    )
            except ImportError:
                log.error(
                    f"config file {fn} exists but is not valid json, and pyyaml is not installed."
                )

    except FileNotFoundError:
        log.info("no config file found at %s", fn)
    except ValueError:
        log.error("error in config file %s.  It will be ignored", fn, exc_info=True)
    return {}


def connection_params(section):
    """
    Pick the ``caldav_*`` keys of a config section and rename them to
    the keyword arguments of ``get_calendar_client``.
    """
    conn_params = {}
    for k in section:
        if k.startswith("caldav_") and section[k]:
            key = k[7:]
            if key == "pass":
                key = "password"
            if key == "user":
                key = "username"
            conn_params[key] = section[k]
    return conn_params
