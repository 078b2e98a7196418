import os
import json
from abc import ABC, abstractmethod


class ComponentExtractor(ABC):
    @abstractmethod
    def process_file(self, file_path: str):
        pass

    @abstractmethod
    def extract_all_components(self):
        pass

    def write_to_file(self, output_path: str):
        # serialize first so a failure never leaves a partial file behind
        payload = json.dumps(self.extract_all_components(), indent=2, ensure_ascii=False)
        out_dir = os.path.dirname(output_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(payload)
