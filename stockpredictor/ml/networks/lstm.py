"""LSTM network reading a price window as a sequence of closes.

Reference: Hochreiter & Schmidhuber (1997) "Long Short-Term Memory"
"""

import torch
import torch.nn as nn

from .base import BaseNetwork


class LSTMPredictorNetwork(BaseNetwork):
    """Sequence regressor for normalized closes.

    Architecture:
        Input (batch, window_size) -> per-step Linear(1, hidden) -> LSTM
        -> final hidden state -> Linear(hidden, 1) -> (batch,)
    """

    def __init__(
        self,
        window_size: int,
        hidden_size: int = 64,
        num_layers: int = 1,
        dropout: float = 0.0,
    ):
        super().__init__(window_size)

        self.hidden_size = hidden_size
        self.num_layers = num_layers
        self.dropout = dropout

        self.input_layer = nn.Linear(1, hidden_size)
        self.activation = nn.ReLU()
        self.lstm = nn.LSTM(
            input_size=hidden_size,
            hidden_size=hidden_size,
            num_layers=num_layers,
            batch_first=True,
            dropout=dropout if num_layers > 1 else 0.0,
        )
        self.output_layer = nn.Linear(hidden_size, 1)

        self._init_weights()

    def _init_weights(self) -> None:
        for name, param in self.lstm.named_parameters():
            if 'weight_ih' in name:
                nn.init.xavier_uniform_(param)
            elif 'weight_hh' in name:
                nn.init.orthogonal_(param)
            elif 'bias' in name:
                nn.init.zeros_(param)

        for module in (self.input_layer, self.output_layer):
            nn.init.xavier_uniform_(module.weight)
            nn.init.zeros_(module.bias)

    def forward(self, windows: torch.Tensor) -> torch.Tensor:
        """Predict one normalized value per window.

        Args:
            windows: Tensor of shape (batch, window_size) or (window_size,)

        Returns:
            Tensor of shape (batch,)
        """
        if windows.dim() == 1:
            windows = windows.unsqueeze(0)

        x = windows.unsqueeze(-1)  # (batch, window_size, 1)
        x = self.activation(self.input_layer(x))

        # h_n: (num_layers, batch, hidden_size)
        _output, (h_n, _c_n) = self.lstm(x)

        return self.output_layer(h_n[-1]).squeeze(-1)

    def get_config(self) -> dict[str, object]:
        config = super().get_config()
        config.update(
            {
                'hidden_size': self.hidden_size,
                'num_layers': self.num_layers,
                'dropout': self.dropout,
            }
        )
        return config
