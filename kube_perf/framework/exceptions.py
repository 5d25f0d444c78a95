class ConfigError(Exception):
    pass


class ClusterKubeconfigNotFoundError(ConfigError):
    def __init__(self, path):
        self.path = path

    def __str__(self):
        return (
            f"Kubeconfig '{self.path}' doesn't exist, please provide a valid "
            f"--kube-config or set KUBECONFIG"
        )


class InvalidConfigValue(ConfigError):
    def __init__(self, section, key, value, expected=None):
        self.section = section
        self.key = key
        self.value = value
        self.expected = expected

    def __str__(self):
        msg = f"Invalid value '{self.value}' for {self.section}['{self.key}']"
        if self.expected:
            msg += f", expected one of {self.expected}"
        return msg
