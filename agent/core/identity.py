# Host identity discovery for the greeting message
import getpass
import logging
import platform
import socket

import psutil  # Process owner lookup

from shared.models import GreetMessage

logger = logging.getLogger(__name__)


class HostIdentity:
    """Collects the facts the agent announces to the controller."""

    def wan_ip(self) -> str:
        """
        Auto-detect the externally reachable IP address of this host.

        Tries, in order:
        1. Route lookup towards a public host (no packet is sent)
        2. Resolving the host name
        3. Falling back to "localhost"

        Returns:
            str: Best-guess external IP address or "localhost"
        """
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
                s.connect(("8.8.8.8", 80))
                return s.getsockname()[0]
        except Exception as e:
            logger.warning(f"Could not auto-detect external IP: {e}")

        try:
            ip = socket.gethostbyname(socket.gethostname())
            if ip != "127.0.0.1":
                return ip
        except Exception as e:
            logger.warning(f"Could not get hostname IP: {e}")

        return "localhost"

    def machine_name(self) -> str:
        return platform.node() or socket.gethostname()

    def user_name(self) -> str:
        try:
            return psutil.Process().username()
        except Exception as e:
            logger.debug(f"psutil could not resolve process owner: {e}")
            return getpass.getuser()

    def os_version(self) -> str:
        return f"{platform.system()} {platform.release()} ({platform.version()})"

    def greeting(self) -> GreetMessage:
        return GreetMessage(
            ip=self.wan_ip(),
            machine_name=self.machine_name(),
            user_name=self.user_name(),
            os_version=self.os_version(),
        )
