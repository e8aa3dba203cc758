#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Directory of physical pickup sites."""

import dataclasses
from typing import Dict, List, Optional, Tuple

from checkout_engine.enums import Sede


@dataclasses.dataclass(frozen=True)
class SiteInfo:
  sede: Sede
  name: str
  address: str
  shopping: str
  zone: str
  # Lower-cased substrings that identify the site inside free text.
  aliases: Tuple[str, ...]

  def formatted(self) -> str:
    parts = [self.address]
    if self.shopping:
      parts.append(self.shopping)
    parts.append(self.zone)
    return f"{self.name}: {', '.join(parts)}"


# Order matters: text scans report sites in this order.
SITES: Dict[Sede, SiteInfo] = {
    Sede.ALMAGRO: SiteInfo(
        sede=Sede.ALMAGRO,
        name="Almagro",
        address="Castro y Agrelo",
        shopping="",
        zone="Capital Federal",
        aliases=("almagro",),
    ),
    Sede.CIUDAD_JARDIN: SiteInfo(
        sede=Sede.CIUDAD_JARDIN,
        name="Ciudad Jardín",
        address="Av. Dr. Ricardo Balbín 2950, local 33",
        shopping="Shopping Paradise",
        zone="Zona Oeste",
        aliases=("ciudad jardín", "ciudad jardin", "ciudad-jardin"),
    ),
}


def parse_sede(value: Optional[str]) -> Optional[Sede]:
  """Returns the recognized site for `value`, or None ('online', 'mixto')."""
  if not value:
    return None
  try:
    return Sede(value.strip().lower())
  except ValueError:
    return None


def sites_mentioned_in(text: str) -> List[Sede]:
  """Returns the sites whose aliases appear in `text`, in directory order."""
  lowered = text.lower()
  return [
      site.sede
      for site in SITES.values()
      if any(alias in lowered for alias in site.aliases)
  ]


def all_formatted_locations() -> List[str]:
  return [site.formatted() for site in SITES.values()]
